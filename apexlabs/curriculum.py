# Starter lessons written to Firestore the first time an admin opens an empty curriculum.
from .models import Lesson, QuizQuestion

INITIAL_CURRICULUM = [
    Lesson(
        id='l1',
        title='Hello, World!',
        description='Your first step into Python. Learn how to print text to the screen.',
        difficulty='Beginner',
        topics=['print function', 'strings', 'syntax'],
        content=(
            "# Welcome to Python\n\n"
            "Python is a high-level programming language known for its readability and simplicity.\n\n"
            "### The Print Function\n"
            "To display output in Python, we use the `print()` function. It takes a \"string\" "
            "(text enclosed in quotes) and outputs it to the console.\n\n"
            "Example:\n```python\nprint(\"Hello, Python!\")\n```\n"
        ),
        initial_code='# Write your code below\nprint("Hello, World!")',
        task='Use the print function to output exactly: Hello, World!',
        expected_output='Hello, World!',
        quiz=[
            QuizQuestion(
                id='q1_1',
                question='Which function is used to output text to the console in Python?',
                options=['console.log()', 'print()', 'echo()', 'write()'],
                correct_answer=1,
            ),
            QuizQuestion(
                id='q1_2',
                question='How do you denote a string in Python?',
                options=['With curly braces {}', 'With square brackets []', 'With quotes "" or \'\'', 'With parenthesis ()'],
                correct_answer=2,
            ),
        ],
    ),
    Lesson(
        id='l2',
        title='Variables & Data Types',
        description='Learn how to store data using variables.',
        difficulty='Beginner',
        topics=['variables', 'integers', 'strings'],
        content=(
            "# Variables\n\n"
            "Variables are containers for storing data values. In Python, you don't need to declare "
            "the type of a variable.\n\n"
            "### Creating Variables\n```python\nx = 5\nname = \"John\"\n```\n\n"
            "Variables can store different types of data:\n"
            "*   **Strings**: text (\"Hello\")\n"
            "*   **Integers**: whole numbers (5)\n"
            "*   **Floats**: decimals (5.99)\n"
        ),
        initial_code="# Create a variable named 'hero' with the value 'Batman'\nhero = \"Batman\"\n# Print the variable\n",
        task='Define a variable named `hero` and assign it the string "Batman". Then print the variable.',
        expected_output='Batman',
        quiz=[
            QuizQuestion(
                id='q2_1',
                question='Which of the following is an Integer?',
                options=['"5"', '5.0', '5', '[5]'],
                correct_answer=2,
            ),
            QuizQuestion(
                id='q2_2',
                question='Do you need to declare a variable type in Python?',
                options=['Yes, always', 'No, Python is dynamically typed', 'Only for strings', 'Only for numbers'],
                correct_answer=1,
            ),
        ],
    ),
    Lesson(
        id='l3',
        title='Control Flow: If/Else',
        description='Make decisions in your code with conditional statements.',
        difficulty='Intermediate',
        topics=['if', 'else', 'conditionals'],
        content=(
            "# If ... Else\n\n"
            "Python supports logical conditions from mathematics.\n\n"
            "*   Equals: a == b\n*   Not Equals: a != b\n*   Less than: a < b\n\n"
            "```python\na = 33\nb = 200\nif b > a:\n  print(\"b is greater than a\")\n"
            "else:\n  print(\"a is greater\")\n```\n"
        ),
        initial_code='score = 85\n\n# Check if score is greater than 50\nif score > 50:\n    print("Pass")\nelse:\n    print("Fail")',
        task='Write an if/else statement. If score > 50 print "Pass", otherwise print "Fail".',
        expected_output='Pass',
        quiz=[
            QuizQuestion(
                id='q3_1',
                question='What keyword handles the "false" condition in an if statement?',
                options=['then', 'otherwise', 'else', 'elif'],
                correct_answer=2,
            ),
        ],
    ),
    Lesson(
        id='l4',
        title='Mini Project: Calculator',
        description='Build a simple calculator using functions and control flow.',
        difficulty='Intermediate',
        topics=['functions', 'return', 'math'],
        content=(
            "# Mini Project: Simple Calculator\n\n"
            "Now let's combine what we've learned! You will build a simple calculator.\n\n"
            "### Functions\n"
            "Functions are blocks of code that run when they are called. You can pass data, known as "
            "parameters, into a function.\n\n"
            "```python\ndef my_function(x):\n  return 5 * x\n```\n"
        ),
        initial_code=(
            "def add(a, b):\n    # Return the sum of a and b\n    pass\n\n"
            "def subtract(a, b):\n    # Return the difference\n    pass\n\n"
            "# Test your functions\nprint(add(5, 3))\nprint(subtract(10, 4))"
        ),
        task='Implement the add and subtract functions so they return the correct mathematical results. The output should be 8 and 6.',
        expected_output='8\n6',
    ),
]
