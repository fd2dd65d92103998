"""Response analysis: mention detection and visibility scoring.

Input:  free-text AI responses (from app.gateway)
Output: appeared/position per check, visibility score per business
"""
