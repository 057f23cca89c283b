"""Packaged Lark grammar resources."""
