"""
Protocol math for DLMM Core
"""
