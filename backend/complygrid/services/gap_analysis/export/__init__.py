from .csv_exporter import CSV_HEADER, export_filename, generate_gap_csv

__all__ = ["CSV_HEADER", "export_filename", "generate_gap_csv"]
