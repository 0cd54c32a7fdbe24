"""Drivers for git, the package manager and the filesystem."""
