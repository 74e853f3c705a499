"""
Composer repository metadata engine.

Assembles the package metadata graph per access scope, caches it and serves
the root, provider and package documents of the composer repository
protocol (v1 provider listings and v2 minified metadata).
"""
