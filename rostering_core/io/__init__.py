"""Input/output layer for roster runs.

Public API:
    load_input(directory)              -- read CSV input dir -> RosterInput
    write_output(run, dir, ...)        -- write aggregated metrics.json to output dir
    render_xlsx(run, path)             -- multi-sheet allocation workbook
    render_compliance_xlsx(v, c, path) -- flags + approval chain workbook
"""

from .reader import RosterInput, load_input
from .writer import write_output

__all__ = [
    "RosterInput",
    "load_input",
    "write_output",
]

# Lazy imports for the optional heavy dependency (openpyxl).
def render_xlsx(*args, **kwargs):
    from .xlsx import render_xlsx as _fn
    return _fn(*args, **kwargs)

def render_compliance_xlsx(*args, **kwargs):
    from .xlsx import render_compliance_xlsx as _fn
    return _fn(*args, **kwargs)
