'''Building blocks shared by several evaluators.'''
