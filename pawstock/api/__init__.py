"""Remote API clients"""
