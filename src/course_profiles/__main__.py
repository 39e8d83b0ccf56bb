from course_profiles.cli import main

main()
