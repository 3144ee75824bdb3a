"""Completion Gateway：网关服务、网页搜索与请求增强。"""
