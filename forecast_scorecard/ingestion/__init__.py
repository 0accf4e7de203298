"""
Prediction ingestion.

Modules
-------
workbook      Fetch a workbook (path or URL), decode sheets, map sheet → year.
sheet_parser  Parse sheet rows into ``Prediction`` records; dedupe forecasters.
"""
