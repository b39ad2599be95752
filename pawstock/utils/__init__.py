"""Shared utilities: config, logging, exceptions"""
