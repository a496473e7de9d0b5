"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants, rate limits
    ├── scheduler.py      # Request lane (rate limiting, throttle handling)
    └── {feature}.py      # One module per endpoint/concept

iNaturalist is currently the only source. All of its requests go through a
single ``RequestScheduler`` so that paginated searches and autocomplete
lookups share one rate-limited lane::

    from natura_map.datasources.inaturalist import Paginator, get_scheduler

    paginator = Paginator(get_scheduler())
    paginator.fetch_all(query, on_page)
"""
