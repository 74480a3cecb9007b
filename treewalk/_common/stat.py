"""Aggregated statistics for walked subtrees."""

from dataclasses import dataclass, replace


@dataclass
class WalkPathStat:
    """Totals for one item or subtree.

    A leaf reflects only itself; a directory is the sum of its counted
    children plus itself.
    """

    total_size: int = 0
    count_files: int = 0
    count_dirs: int = 0
    count_links: int = 0
    max_file_date_modified: float = 0.0  # st_mtime of the newest file

    @property
    def count_items(self) -> int:
        """Number of counted files, directories and links."""
        return self.count_files + self.count_dirs + self.count_links

    def copy(self) -> 'WalkPathStat':
        return replace(self)

    def to_dict(self) -> dict:
        return {
            'total_size': self.total_size,
            'count_files': self.count_files,
            'count_dirs': self.count_dirs,
            'count_links': self.count_links,
            'max_file_date_modified': self.max_file_date_modified,
        }


def add_stats(total_stat: WalkPathStat, item_stat: WalkPathStat) -> None:
    """Fold ``item_stat`` into ``total_stat`` in place.

    Counters and sizes add up; the modification time keeps the maximum.
    """
    total_stat.total_size += item_stat.total_size
    total_stat.max_file_date_modified = max(
        total_stat.max_file_date_modified,
        item_stat.max_file_date_modified,
    )
    total_stat.count_files += item_stat.count_files
    total_stat.count_dirs += item_stat.count_dirs
    total_stat.count_links += item_stat.count_links


def format_size(size: int) -> str:
    """Format a byte count with space-grouped thousands, right-justified.

    >>> format_size(1234567)
    '          1 234 567'
    """
    return f"{size:,}".replace(",", " ").rjust(19)
