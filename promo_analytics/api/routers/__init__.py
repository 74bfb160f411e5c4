"""API Routers package"""
