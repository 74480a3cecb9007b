#!/usr/bin/env python3
"""
Basic walk example: disk usage of a project, respecting its .gitignore.

This example demonstrates:
- Filtering with inline globs and an ignore file
- Size logging for the top levels
- Collecting large files with a handler
- Recovering from inaccessible paths
"""

import asyncio
import stat as stat_module
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from treewalk import GlobValueType, WalkPathLogOptions
from treewalk.aio import ContinueOnErrorsPolicy, walk_tree_async
from treewalk.glob import Glob


async def main():
    """Walk a directory and report its size."""
    # Get the root path from command line or use current directory
    root_path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path.cwd()

    print(f"Walking: {root_path}")
    print("-" * 50)

    globs = [Glob('**/*'), Glob('**/.git', exclude=True)]
    if (root_path / '.gitignore').exists():
        globs.append(Glob('.gitignore', GlobValueType.FILE_CONTAINS_PATTERNS, exclude=True))

    large_files = []

    def handle_path(arg):
        # Track files larger than 1MB
        if stat_module.S_ISREG(arg.stat.st_mode) and arg.item_stat.total_size > 1_000_000:
            large_files.append((arg.path, arg.item_stat.total_size))
        return True

    policy = ContinueOnErrorsPolicy(verbose=True)
    stat = await walk_tree_async(
        root_path,
        globs,
        handle_path=handle_path,
        handle_error=policy,
        log=WalkPathLogOptions(max_nested_level=1, min_total_content_size=1_000_000),
    )

    # Print summary
    print(f"\nWalk Summary:")
    print(f"  Directories: {stat.count_dirs:,}")
    print(f"  Files: {stat.count_files:,}")
    print(f"  Links: {stat.count_links:,}")
    print(f"  Total Size: {stat.total_size / 1024 / 1024:.1f} MB")
    if policy.errors:
        print(f"  Skipped: {len(policy.errors)} inaccessible paths")

    if large_files:
        print(f"\nLarge Files (>1MB):")
        # Sort by size and show top 5
        large_files.sort(key=lambda x: x[1], reverse=True)
        for path, size in large_files[:5]:
            print(f"  {size / 1024 / 1024:.1f} MB: {Path(path).name}")


if __name__ == "__main__":
    print("treewalk - Basic Walk Example")
    print("=" * 50)
    asyncio.run(main())
