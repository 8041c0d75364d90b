PROMPTS = {
    "recommend": """
    Based on the following user profile and available courses, recommend the top 5 most suitable courses.
    User Profile:
    - Learning Style: {learning_style}
    - Current Level: {difficulty_level}
    - Topics of Interest: {topics}
    - Enrolled Courses: {enrolled_count}

    Available Courses:
    {courses}

    Output ONLY valid JSON. No markdown tags.
    Schema: {{"recommendations": [{{"course_id": "string", "confidence": number, "reason": "string"}}]}}
    """,
    "analyze": """
    Analyze the following {content_type} content and provide insights.
    Content: {content}

    Output ONLY valid JSON. No markdown tags.
    Schema: {{"complexity": number, "estimated_time_to_complete": number, "key_concepts": ["string"],
    "prerequisites": ["string"], "related_topics": ["string"], "difficulty_score": number}}
    """,
    "grade": """
    Grade the following assignment submission based on the provided rubric.
    Submission: {submission}

    Rubric:
    {rubric}

    Output ONLY valid JSON. No markdown tags.
    Schema: {{"score": number, "confidence": number, "feedback": "string",
    "rubric_scores": [{{"criterion": "string", "score": number, "feedback": "string"}}]}}
    """,
    "learning_path": """
    Based on the user's progress and current course, suggest an optimized learning path.
    User Profile:
    - Learning Style: {learning_style}
    - Current Level: {difficulty_level}
    - Enrolled Courses: {enrolled_count}
    - Current Course: {course_title}

    Lessons (id: title):
    {lessons}

    Output ONLY valid JSON. No markdown tags.
    Schema: {{"suggested_order": ["lesson_id"], "estimated_completion_time": number, "recommended_focus": ["string"],
    "potential_challenges": ["string"], "optimization_strategy": "string"}}
    """,
    "plagiarism": """
    Analyze the following {content_type} content for potential plagiarism.
    Content: {content}

    Output ONLY valid JSON. No markdown tags.
    Schema: {{"plagiarism_score": number, "suspicious_sections": [{{"text": "string", "confidence": number,
    "suggestion": "string"}}], "originality_score": number}}
    """,
}
