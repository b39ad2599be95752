"""View gating"""
