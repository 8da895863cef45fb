"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # Locations, download/read functions
    └── loaders.py        # Validation and coercion into DataFrames

Adding a new survey table
-------------------------
1. Add the table name to ``reference.survey.SURVEY_TABLES`` so the fetch
   flow downloads ``{source}/{name}.csv`` into ``raw/{name}.csv``.

2. Write a loader that validates the raw frame::

       def load_something(df: pd.DataFrame, stations: pd.DataFrame) -> pd.DataFrame:
           _require_columns(df, ("station_id", ...), "something")
           ...

3. Re-export it in ``survey/__init__.py`` with ``__all__``.

4. Wire it into the analysis DAG (see ``analysis/nodes.py``): add a
   ``something_raw`` input and a ``something`` node that calls the loader.

5. Add tests in ``tests/test_survey.py``.
"""
