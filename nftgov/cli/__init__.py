"""
nftgov Command Line Tools
"""
