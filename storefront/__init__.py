"""Storefront catalog service: cached product catalog with search and size filtering."""
