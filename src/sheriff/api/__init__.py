"""
REST API for the Sheriff's Office service.
"""
