"""
API 層

FastAPI routers，只負責解析輸入和把業務異常轉成 HTTP status
"""
