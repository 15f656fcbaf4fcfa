"""
Data ingestion and normalization module.

Handles parsing of kline payloads from the market-data collaborator,
validation of candle series and the client interface used to fetch them.
"""
