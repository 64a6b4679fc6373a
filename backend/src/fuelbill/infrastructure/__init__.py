"""
Infrastructure package - PDF handling and receipt files on disk.
"""
