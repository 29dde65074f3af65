"""Pydantic schemas shared by API routers."""
