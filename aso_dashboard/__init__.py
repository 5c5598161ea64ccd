"""ASO Observatory Streamlit dashboard."""
