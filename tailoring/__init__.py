"""
Tailoring app

Purpose: Turn the master profile into a job-specific CV with an AI model,
track job applications, and render CVs for print.
"""
