"""Configuration, cargo command lines, asset syncing and test runs for Leptos projects."""

__version__ = "0.1.0"