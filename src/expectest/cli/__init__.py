"""expectest command line interface."""
