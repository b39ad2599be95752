"""Stores and domain services"""
