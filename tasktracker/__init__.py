"""
Task Tracker: departments, users and task hierarchy service
"""
