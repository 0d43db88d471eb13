"""ingestion package"""
