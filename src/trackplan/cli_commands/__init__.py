"""Click command modules registered on the ``trackplan`` group in cli.py."""
