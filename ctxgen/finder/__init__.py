from .comparators import DateComparator, NumberComparator
from .matcher import FileHandle, FileMatcher, FinderResult
from .patterns import glob_to_regex, is_regex

__all__ = [
    "DateComparator",
    "FileHandle",
    "FileMatcher",
    "FinderResult",
    "NumberComparator",
    "glob_to_regex",
    "is_regex",
]
