"""
核心業務邏輯層

這個 package 包含所有核心業務邏輯，包括：
- Manager：管理 Stopwatch 的生命週期與狀態轉換
- Repository：Record Store 抽象與實作
- Locks：並發控制工具
- Clock：可注入的時間來源
"""
