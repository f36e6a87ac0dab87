"""Branching chat/quiz engine: dialogue-graph traversal, drag-and-drop matching
quizzes and the score/streak/achievement bookkeeping they drive.

Rendering and translations are supplied by the host application.
"""
