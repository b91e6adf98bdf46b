"""
config.py

Configuration module for the PDF-to-text conversion pipeline.

Purpose:
--------
Contains all constants and settings used across the package,
including external command names, OCR language, crop geometry,
timeouts, and batch defaults.

Design Principle:
-----------------
Configuration is isolated from business logic.
Changing a timeout or pointing at a different Tesseract binary
should not require editing pipeline code.
"""

import os

# -----------------------------
# External commands (poppler-utils)
# -----------------------------
PDFTOTEXT_CMD = os.getenv("PDF2TXT_PDFTOTEXT_CMD", "pdftotext")
POPPLER_PATH = os.getenv("PDF2TXT_POPPLER_PATH")  # None -> pdfinfo / pdftoppm on PATH (pdf2image)

# -----------------------------
# Rasterization
# -----------------------------
TARGET_DPI = 150  # pdftoppm default; the crop geometry below assumes it

# -----------------------------
# OCR engine
# -----------------------------
OCR_LANGUAGE = os.getenv("PDF2TXT_OCR_LANGUAGE", "jpn")
TESSERACT_CMD = os.getenv("TESSERACT_CMD")  # None -> pytesseract default ("tesseract" on PATH)

# -----------------------------
# Cropping (ImageMagick-style geometry 1000x1475+150+150)
# -----------------------------
CROP_WIDTH = 1000
CROP_HEIGHT = 1475
CROP_OFFSET_X = 150
CROP_OFFSET_Y = 150

# -----------------------------
# Timeouts (seconds)
# -----------------------------
TOOL_TIMEOUT_SECONDS = float(os.getenv("PDF2TXT_TOOL_TIMEOUT", "300"))
FETCH_TIMEOUT_SECONDS = float(os.getenv("PDF2TXT_FETCH_TIMEOUT", "60"))

# -----------------------------
# Network
# -----------------------------
VALIDATE_HTTP_STATUS = True
USER_AGENT = "pdf2txt-precedent/0.1 (+https://www.courts.go.jp)"

# -----------------------------
# Performance
# -----------------------------
BATCH_WORKERS = 1  # Sequential by default; one case fully before the next

# -----------------------------
# Paths
# -----------------------------
DEFAULT_TMP_DIR = "tmp"
DEFAULT_OUTPUT_DIR = "."
PDF_SUFFIX = ".pdf"
TEXT_SUFFIX = ".txt"
IMAGE_SUFFIX = ".jpg"
PAGES_DIR_SUFFIX = "_pages"
ERROR_LOG_SUFFIX = "_err.txt"
