"""
Monitoring Module.

What you cannot measure you cannot improve.

- recall_metrics: precision/recall/F1/MRR/NDCG of fused rankings
- latency_metrics: rolling fusion latency percentiles
"""
