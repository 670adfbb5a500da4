"""
Tarball Mirror

A tool for downloading npm packages and their transitive dependencies as
tarballs, with license auditing and a dependency report.
"""

__version__ = "0.1.0"
__author__ = "Imranur Rahman"

from .cli import main

__all__ = ["main"]
