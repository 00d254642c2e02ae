"""Build-time assembly of a single static landing page.

This package turns a declarative ``site.yaml`` (page metadata, an ordered list
of content sections, font families, build options), a tree of source images
and variable fonts, and a design-token stylesheet into a static bundle with
content-hashed assets and no JavaScript unless a section opts into an
interactive island.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from landing_build import main
>>> main()  # doctest: +SKIP
>>> from landing_build import app
>>> app.name[0]
'landing'
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
