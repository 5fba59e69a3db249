"""Multiple-choice questions used when no LLM is available."""

APTITUDE_BANK = [
    {
        "question": "What comes next in the sequence 2, 4, 8, 16, ?",
        "options": ["24", "28", "32", "30"],
        "correct_answer": "32",
        "tags": ["sequence", "pattern"],
    },
    {
        "question": "A train covers 180 km in 3 hours. What is its average speed?",
        "options": ["50 km/h", "60 km/h", "65 km/h", "90 km/h"],
        "correct_answer": "60 km/h",
        "tags": ["speed", "arithmetic"],
    },
    {
        "question": "If all roses are flowers and some flowers fade quickly, which statement must be true?",
        "options": [
            "All roses fade quickly",
            "Some roses fade quickly",
            "All roses are flowers",
            "No flowers are roses",
        ],
        "correct_answer": "All roses are flowers",
        "tags": ["logic", "syllogism"],
    },
    {
        "question": "What is 15% of 240?",
        "options": ["32", "36", "38", "42"],
        "correct_answer": "36",
        "tags": ["percentages"],
    },
    {
        "question": "Which word is the odd one out: apple, banana, carrot, mango?",
        "options": ["apple", "banana", "carrot", "mango"],
        "correct_answer": "carrot",
        "tags": ["classification", "verbal"],
    },
    {
        "question": "Five workers finish a job in 12 days. How many days do 6 workers need at the same rate?",
        "options": ["8", "10", "11", "14"],
        "correct_answer": "10",
        "tags": ["work", "ratio"],
    },
    {
        "question": "A is taller than B, and B is taller than C. Who is the shortest?",
        "options": ["A", "B", "C", "Cannot be determined"],
        "correct_answer": "C",
        "tags": ["ordering", "logic"],
    },
    {
        "question": "Choose the word closest in meaning to 'concise'.",
        "options": ["brief", "vague", "lengthy", "careless"],
        "correct_answer": "brief",
        "tags": ["vocabulary", "verbal"],
    },
]

TECHNICAL_BANK = [
    {
        "question": "Which of the following is a programming paradigm?",
        "options": ["Object-oriented", "Database", "Network", "Hardware"],
        "correct_answer": "Object-oriented",
        "tags": ["programming", "oop"],
    },
    {
        "question": "What is the average time complexity of looking up a key in a hash table?",
        "options": ["O(1)", "O(log n)", "O(n)", "O(n log n)"],
        "correct_answer": "O(1)",
        "tags": ["data structures", "complexity"],
    },
    {
        "question": "Which SQL clause filters rows after aggregation?",
        "options": ["WHERE", "HAVING", "GROUP BY", "ORDER BY"],
        "correct_answer": "HAVING",
        "tags": ["sql"],
    },
    {
        "question": "Which HTTP method is idempotent?",
        "options": ["POST", "PUT", "PATCH", "CONNECT"],
        "correct_answer": "PUT",
        "tags": ["http", "web"],
    },
    {
        "question": "Which data structure serves items in first-in, first-out order?",
        "options": ["Stack", "Queue", "Heap", "Tree"],
        "correct_answer": "Queue",
        "tags": ["data structures"],
    },
    {
        "question": "What does the 'I' in ACID stand for?",
        "options": ["Integrity", "Isolation", "Indexing", "Immutability"],
        "correct_answer": "Isolation",
        "tags": ["databases", "transactions"],
    },
    {
        "question": "Which git command records staged changes in the repository history?",
        "options": ["git add", "git commit", "git push", "git stash"],
        "correct_answer": "git commit",
        "tags": ["git", "tooling"],
    },
    {
        "question": "What is the worst-case time complexity of binary search on a sorted array?",
        "options": ["O(1)", "O(log n)", "O(n)", "O(n^2)"],
        "correct_answer": "O(log n)",
        "tags": ["algorithms", "complexity"],
    },
]


def fallback_mcqs(test_round: int, count: int) -> list[dict]:
    """Up to ``count`` bank questions for the round (1 aptitude, 2 technical)."""
    bank = APTITUDE_BANK if test_round == 1 else TECHNICAL_BANK
    return [dict(q) for q in bank[:count]]
