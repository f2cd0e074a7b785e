"""Schemas shared by split listings"""
from pydantic import BaseModel


class PaginationMeta(BaseModel):
    """Page position and totals of a split listing"""
    page: int
    page_size: int
    total_items: int
    total_pages: int
