#!/usr/bin/env python3
"""
ResGuard CLI Interface

Command-line interface for inspecting and bounding an icon cache directory
and watching process memory.
"""

import argparse
import json
import sys
import time

from . import __version__
from .config import MIB, ResGuardConfig
from .core import ResourceCoordinator
from .guards.cache_guard import AccessTracker, CacheSizeMeter, EvictionPlanner
from .sampling import MemorySampler


def create_parser():
    """Create the argument parser for ResGuard CLI."""
    parser = argparse.ArgumentParser(
        prog='resguard',
        description='ResGuard - Cache eviction, memory sampling and throttled GC',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  resguard stats --cache-dir ~/.launcher/icon-cache
  resguard cleanup --cache-dir ~/.launcher/icon-cache --max-mb 20
  resguard clear --cache-dir ~/.launcher/icon-cache
  resguard watch --cache-dir ~/.launcher/icon-cache --duration 30 --sample-interval 1
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Stats command
    stats_parser = subparsers.add_parser('stats', help='Show cache size and a memory snapshot')
    stats_parser.add_argument('--cache-dir', '-d', required=True, help='Cache directory')
    stats_parser.add_argument('--json', action='store_true', help='Output in JSON format')

    # Cleanup command
    cleanup_parser = subparsers.add_parser('cleanup', help='Run one LRU eviction pass')
    cleanup_parser.add_argument('--cache-dir', '-d', required=True, help='Cache directory')
    cleanup_parser.add_argument('--max-mb', type=float, default=None,
                                help='Cache budget in MB (default: 50)')
    cleanup_parser.add_argument('--target', type=float, default=None,
                                help='Fraction of the budget to shrink to (default: 0.8)')

    # Clear command
    clear_parser = subparsers.add_parser('clear', help='Delete every cache entry')
    clear_parser.add_argument('--cache-dir', '-d', required=True, help='Cache directory')

    # Watch command
    watch_parser = subparsers.add_parser('watch', help='Run the coordinator for a while')
    watch_parser.add_argument('--cache-dir', '-d', required=True, help='Cache directory')
    watch_parser.add_argument('--duration', type=float, default=60.0,
                              help='Seconds to run (default: 60)')
    watch_parser.add_argument('--sample-interval', type=float, default=None,
                              help='Memory sampling interval in seconds')
    watch_parser.add_argument('--optimize-interval', type=float, default=None,
                              help='Optimize cycle interval in seconds')
    watch_parser.add_argument('--json', action='store_true', help='Output in JSON format')

    return parser


def _load_config(args, **overrides) -> ResGuardConfig:
    config = ResGuardConfig.from_env().merge(cache_root=args.cache_dir)
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return config.merge(**overrides) if overrides else config


def format_stats_text(stats):
    """Format coordinator stats for text output."""
    lines = []
    lines.append("ResGuard Stats")
    lines.append("=" * 14)

    cache = stats['cache']
    lines.append(f"Cache: {cache['size'] / MIB:.2f}MB / {cache['max_size'] / MIB:.2f}MB "
                 f"({cache['entries']} entries, {cache['tracked']} tracked)")

    memory = stats.get('memory')
    if memory:
        current = memory['current']
        lines.append(f"Memory: {current['rss'] / MIB:.1f}MB RSS, "
                     f"{current['heap_used'] / MIB:.1f}MB heap")
        lines.append(f"Peak: {memory['peak']['rss'] / MIB:.1f}MB RSS "
                     f"over {memory['measurements']} samples")
    else:
        lines.append("Memory: no samples")

    if 'state' in stats:
        lines.append(f"State: {stats['state'].upper()} ({stats.get('cycles', 0)} cycles)")

    return "\n".join(lines)


def cmd_stats(args):
    """Handle stats command."""
    try:
        config = _load_config(args)
        meter = CacheSizeMeter(config.cache_root)
        entries = meter.list_entries()
        sampler = MemorySampler(max_samples=config.max_samples)
        sampler.record_sample()

        stats = {
            'memory': sampler.get_stats(),
            'cache': {
                'size': sum(e.size_bytes for e in entries),
                'max_size': config.max_cache_bytes,
                'entries': len(entries),
                'tracked': 0,
            },
        }

        if args.json:
            print(json.dumps(stats, indent=2))
        else:
            print(format_stats_text(stats))

    except Exception as e:
        print(f"Failed to get stats: {e}")
        return 1

    return 0


def cmd_cleanup(args):
    """Handle cleanup command."""
    try:
        max_bytes = int(args.max_mb * MIB) if args.max_mb is not None else None
        config = _load_config(args, max_cache_bytes=max_bytes, target_fraction=args.target)
        planner = EvictionPlanner(CacheSizeMeter(config.cache_root), AccessTracker(),
                                  max_cache_bytes=config.max_cache_bytes,
                                  target_fraction=config.target_fraction)
        result = planner.cleanup()
        print(f"Removed {result.removed} files, freed {result.freed_mb:.2f}MB")

    except Exception as e:
        print(f"Failed to clean up cache: {e}")
        return 1

    return 0


def cmd_clear(args):
    """Handle clear command."""
    try:
        config = _load_config(args)
        planner = EvictionPlanner(CacheSizeMeter(config.cache_root), AccessTracker())
        result = planner.clear_all()
        print(f"Cleared {result.removed} files, freed {result.freed_mb:.2f}MB")

    except Exception as e:
        print(f"Failed to clear cache: {e}")
        return 1

    return 0


def cmd_watch(args):
    """Handle watch command."""
    try:
        config = _load_config(args,
                              sample_interval_s=args.sample_interval,
                              optimize_interval_s=args.optimize_interval)
        with ResourceCoordinator(config=config) as coordinator:
            time.sleep(max(0.0, args.duration))
            stats = coordinator.get_stats()
            last = coordinator.last_result

        if args.json:
            payload = dict(stats, last_cycle=last.to_dict() if last is not None else None)
            print(json.dumps(payload, indent=2))
        else:
            print(format_stats_text(stats))

    except ValueError as e:
        print(f"Invalid configuration: {e}")
        return 1
    except Exception as e:
        print(f"Failed to watch: {e}")
        return 1

    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to command handlers
    handlers = {
        'stats': cmd_stats,
        'cleanup': cmd_cleanup,
        'clear': cmd_clear,
        'watch': cmd_watch,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
