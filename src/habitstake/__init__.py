"""HabitStake: habit challenges with progress tracking and social point stakes."""
