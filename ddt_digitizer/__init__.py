"""DDT Digitizer.

Turns photographed or scanned Italian transport documents (DDT) into
structured rows: Tesseract OCR, rule-based field extraction, per-session
accumulation, and template-preserving spreadsheet export with optional
PDF rendering for printing.
"""

__version__ = "1.0.0"
