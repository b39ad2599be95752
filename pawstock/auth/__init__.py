"""Session authentication"""
