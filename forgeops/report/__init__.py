"""Run summary rendering — Rich tables for the terminal, JSON for ``--report``.

Modules
-------
renderer
    ``SummaryRenderer`` turns a ``RunSummary`` into a Rich panel;
    ``write_report`` serialises it to JSON.
"""
