"""guardrails package"""
