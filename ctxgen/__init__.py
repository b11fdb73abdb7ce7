"""ctxgen: compile code, pages, diffs and notes into context documents."""

__version__ = "0.1.0"
