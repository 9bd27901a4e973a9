"""CLI package for Spotify Podcast Analytics

Exports show data to CSV/JSON from the command line. The entry point is
cli.main:main.
"""
