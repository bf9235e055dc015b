"""
FastAPI backend pipeline for the form coach mobile application.

Processes streamed pose snapshots through the coaching pipeline:
    Stage 1: Pose validation & joint angles
    Stage 2: Form evaluation, phase classification & rep counting
    Stage 3: Coaching orchestration (on-screen text vs. speech)
    Stage 4: Post-workout summary (LangGraph + Gemini LLM)
"""
