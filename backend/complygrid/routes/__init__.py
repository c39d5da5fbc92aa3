"""
ComplyGrid API Routes Package
"""
