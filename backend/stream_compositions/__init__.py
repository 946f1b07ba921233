"""Stream compositions backend: transaction cursors and product post-ingestion."""
