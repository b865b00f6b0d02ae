"""
Truck Yard Logistics Dashboard

Analytics backend for turning the periodically republished yard CSV export
into shift-day rollups, material pareto, hourly arrival flow and a
single-day on-time monitor.

To swap the CSV feed for a database:
    Replace loaders.csv_feed.fetch_csv_text and the decode step with a query
    returning the same six fields; build_truck_events() output is the only
    contract the KPI functions rely on.

To connect to Streamlit/Dash:
    Call dashboard.compute_dashboard_views(events, criteria, settings,
    monitor_date, version) and render the returned DataFrames and dicts.

To support a new header vocabulary:
    Add keywords to config.COLUMN_KEYWORDS for the affected field.
"""
