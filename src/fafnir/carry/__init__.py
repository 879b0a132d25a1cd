"""Boss carry spreadsheet access and filtering."""
