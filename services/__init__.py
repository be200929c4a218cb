"""
服務層

這個 package 包含純計算邏輯，不負責狀態轉換：
- ElapsedService：有效 elapsed 計算
"""
