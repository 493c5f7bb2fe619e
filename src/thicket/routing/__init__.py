"""Routing: segment parsing, tree building, matching, and enumeration.

Chains are parsed and compiled into an immutable tree once per source
snapshot; requests are matched against that tree in O(path-depth) for
the common case.
"""
