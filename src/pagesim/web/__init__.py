"""JSON web API for the paging simulator.

This package provides a Flask application that exposes a running
simulator over HTTP, for browser visualisers.  It is an **optional**
extra — install with::

    pip install pagesim[web]

See ``app.py`` for the endpoint list.
"""
