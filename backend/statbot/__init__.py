"""Club statistics chatbot engine."""
