"""Demo pipeline showing how a caller drives the trace API."""

from xray.demo.competitor_selection import run_competitor_selection

__all__ = ["run_competitor_selection"]
