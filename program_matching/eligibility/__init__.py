"""Hard eligibility filtering of support programs."""

from .filter import HardFilter

__all__ = ["HardFilter"]
