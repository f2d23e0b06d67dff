from . import bgg_collection
from . import csv_source

# Loaders for the desired collection, keyed by file suffix.
SOURCES = {
    ".csv": csv_source.load_rows,
}
