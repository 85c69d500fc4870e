"""
Ranking engine: ordering scored rows and the table sort-toggle state.

Modules
-------
ranker : rank(), top_n(), SortState.
"""
