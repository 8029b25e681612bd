"""Database boundary for the bar inventory API.

`db.driver.DatabaseDriver` turns the `databases` connection into the event
protocol the query layer consumes: row events, one completion event, or one
error event per submitted statement.
"""
