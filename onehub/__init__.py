"""
OneHub staffing CRM backend.

Core components:
- api: FastAPI routers for requirements, consultants, interviews, campaigns
- agents: JD parser, email job extractor, interview focus writer
- services: bulk email send / poll / history sync pipeline
- tools: email server client, Groq LLM, PDF parser
"""
