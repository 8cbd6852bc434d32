"""Centralised selectors and page strings for the order sheet simulation."""

# ==== READINESS ====
RESULT_GLOBAL = "lastFinalState"
TOTAL_ASSET = "#totalAsset"

# ==== MODE + OVERLAY ====
TOGGLE_MODE = "#toggleMode"
ORDER_SHEET_BUTTON = "#btnOrderSheet"
ORDER_SHEET_MODAL = "#orderSheetModal"
ORDER_SHEET_CONTENT = "#orderSheetModal .modal-content"

# ==== SUMMARY ====
PREVIEW_TOTAL_ASSET = "#previewTotalAsset"

# ==== PAGE TEXT ====
# Native overlay title, replaced by the branded header.
ORDER_SHEET_TITLE = "주문표 (Order Sheet)"
# Overlay button captions that mean nothing outside the page.
BUTTON_LABELS = ("닫기", "텍스트 복사")
