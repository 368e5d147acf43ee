"""Command-line interface for rowing-ble."""
