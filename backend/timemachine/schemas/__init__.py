"""Pydantic Schema"""
