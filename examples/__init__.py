"""Example clients for kvdefaults."""
