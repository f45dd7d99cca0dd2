"""Academic administration API.

This package exposes the models, repositories and services behind the
FastAPI application in `academics.main`: token-authenticated CRUD for
students, teachers, courses, subjects and their associations.
"""
