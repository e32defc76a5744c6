"""
Routing logic: route table, request normalization, CORS policy, response
packaging and post-deploy orchestration.
"""
