"""
Markdown Publisher web application.
"""
