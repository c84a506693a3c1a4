# 文件: pytriax/gui/__init__.py
"""Qt 线程桥接 (需要 PyQt5)"""
