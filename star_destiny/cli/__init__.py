"""Command line front end for Star Destiny."""
